"""
Editor-side completion orchestration.

Decides when completion requests fire, races the replies of every
completion provider attached to a document and reconciles them with the
completion popup while the user keeps typing.
"""

__version__ = "0.1.0"
