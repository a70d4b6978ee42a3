"""
RAG (Retrieval Augmented Generation) app.

Provides:
- Query embedding via the OpenRouter embeddings endpoint
- Similarity retrieval with threshold filtering and source citation
- Grounded LLM prompting with payment-required model fallback
- Assistant settings persistence
"""
