"""
Top-level package for the db_versions project.

The version bumper lives under `db_versions.bumper`; installing the project
exposes the `update-db-version` console script.
"""

__all__: list[str] = []
