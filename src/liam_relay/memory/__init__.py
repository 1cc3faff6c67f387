"""
Memory — ZIP archive ingestion into the recall index.

An uploaded archive is checked against the ingestion log, extracted into
a timestamped folder, and its text files are chunked, embedded and
appended to the vector store.
"""
