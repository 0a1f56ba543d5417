"""
RepoLens

GitHub repository analyzer: tech stack detection, size estimates,
quality scores and commit activity for a single repository.
"""

__version__ = "1.0.0"
