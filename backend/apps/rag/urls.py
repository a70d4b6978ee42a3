"""
RAG URL routing.
"""
from django.urls import path

from apps.rag.views import AskView, RetrieveView

urlpatterns = [
    path('retrieve', RetrieveView.as_view(), name='rag-retrieve'),
    path('ask', AskView.as_view(), name='rag-ask'),
]
