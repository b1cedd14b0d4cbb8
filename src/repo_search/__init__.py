"""
Repo Search - organization-wide text search for Azure DevOps repositories.

Uses the server-side code search API when it is available and falls back to
an exhaustive file-by-file scan of each repository when it is not.
"""

__version__ = "1.0.0"
__author__ = "Seba Battig"
