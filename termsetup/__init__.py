"""termsetup — transactional macOS terminal environment setup."""

__version__ = "0.1.0"
