"""CLI command implementations for assetpub.

- publish: Inspect and upload bundler output
"""

from assetpub.commands.publish import publish

__all__ = ["publish"]
