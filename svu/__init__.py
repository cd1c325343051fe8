"""Service Version Updater (SVU).

Keeps the installer's JSON manifest of bundled services (nginx, MariaDB, PHP,
phpMyAdmin) in sync with upstream releases:
 - per-service adapters that read upstream tag/release listings
 - strict version normalization and patch/minor/major classification
 - artifact probing before a download URL is trusted
 - idempotent manifest rewrite plus CI signals for auto-merge vs review
"""
