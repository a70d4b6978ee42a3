"""
Conversation transcript app.

Append-only chat history; the retrieval pipeline never reads it.
"""
