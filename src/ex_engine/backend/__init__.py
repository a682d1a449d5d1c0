"""External Vim-compatible backends that can run commands on our behalf."""

from .neovim import DelegatedCommand, NeovimBridge

__all__ = ["DelegatedCommand", "NeovimBridge"]
