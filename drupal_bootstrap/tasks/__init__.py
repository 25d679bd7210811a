"""Task orchestrators for the ``install`` and ``compile`` commands."""
