"""Core numerical primitives for netopt."""

from . import activations, conv, initializers, netparam, permutation, rules, types

__all__ = ["activations", "conv", "initializers", "netparam", "permutation", "rules", "types"]
