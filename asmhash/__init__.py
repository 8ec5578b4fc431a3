"""Deterministic content fingerprints for sets of compiled modules.

A run expands the input paths, disassembles recognised modules, strips version noise
from the textual representation and folds everything into one aggregate digest plus a
manifest of per-artifact digests.
"""
