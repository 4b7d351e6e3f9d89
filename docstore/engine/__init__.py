"""
docstore Engine: storage engine, configuration, logging, errors.

Submodules are imported explicitly (docstore.engine.storage, ...) because the
documents package depends on docstore.engine.errors.
"""
