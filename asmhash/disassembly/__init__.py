"""Disassembler collaborators that turn a compiled module into IL text plus resources."""
