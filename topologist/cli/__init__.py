"""Command line shell for topologist."""
