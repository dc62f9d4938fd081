"""
kepify: consolidate Kubernetes Enhancement Proposal metadata into one JSON file.
"""

__version__ = "0.1.0"
