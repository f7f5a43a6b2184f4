"""GitHub App running buildifier and bazel checks on pushed commits."""

__version__ = "0.1.0"
