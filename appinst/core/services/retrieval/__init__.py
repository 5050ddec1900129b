"""
Retrieval service — fetch distribution files and verification artifacts.
"""

from appinst.core.services.retrieval.retriever import Retriever  # noqa: F401
