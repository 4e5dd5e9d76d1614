"""Devflow - personal Xcode/GitHub development workflow helper.

Builds and tests the project, merges agent-authored pull requests,
keeps the long-lived branches in sync and updates itself.
"""

__version__ = "0.1.0"
