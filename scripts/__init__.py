"""
Scripts Package.

This package contains operational scripts for the movie scores service.

Scripts:
- bootstrap_db: Database creation, seeding and validation
"""

# Scripts are meant to be run directly, not imported
