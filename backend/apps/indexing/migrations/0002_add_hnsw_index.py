"""
Migration to add HNSW indexes for cosine similarity search.

Covers both the chunk vectors (match_chunks) and the whole-document
vectors (match_documents).
"""
from django.db import migrations


class Migration(migrations.Migration):

    dependencies = [
        ('indexing', '0001_initial'),
    ]

    operations = [
        migrations.RunSQL(
            sql="""
                CREATE INDEX IF NOT EXISTS document_chunks_embedding_hnsw_idx
                ON document_chunks
                USING hnsw (embedding vector_cosine_ops)
                WITH (m = 16, ef_construction = 64);
            """,
            reverse_sql="DROP INDEX IF EXISTS document_chunks_embedding_hnsw_idx;"
        ),
        migrations.RunSQL(
            sql="""
                CREATE INDEX IF NOT EXISTS documents_embedding_hnsw_idx
                ON documents
                USING hnsw (embedding vector_cosine_ops)
                WITH (m = 16, ef_construction = 64);
            """,
            reverse_sql="DROP INDEX IF EXISTS documents_embedding_hnsw_idx;"
        ),
    ]
