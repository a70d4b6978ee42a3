"""
URL configuration for the conversations app.
"""
from django.urls import path
from . import views

app_name = 'conversations'

urlpatterns = [
    path('conversations', views.create_conversation, name='create'),
    path('messages', views.messages, name='messages'),
]
