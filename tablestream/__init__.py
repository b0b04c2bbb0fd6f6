"""Codecs, headers, group graphs, partition balancing, emitters and callback contexts for stream processing."""

__version__ = "0.1.0"