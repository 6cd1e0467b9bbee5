"""Shared router for TODO endpoints."""

from fastapi import APIRouter

todo_router = APIRouter()
