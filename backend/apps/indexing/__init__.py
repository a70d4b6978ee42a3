"""
Document indexing pipeline: chunking and embedding.
"""
