"""
URL configuration for ldap_gateway project.

The `urlpatterns` list routes URLs to views. For more information please see:
    https://docs.djangoproject.com/en/5.2/topics/http/urls/
"""
from django.urls import include, path

urlpatterns = [
    path('', include('accounts.urls')),
    path('', include('monitoring.urls')),
]
