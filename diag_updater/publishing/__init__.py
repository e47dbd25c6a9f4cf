"""Publish sinks for diagnostic batches."""

from .base import FanoutPublisher, Publisher
from .board import StatusBoard
from .models import DiagnosticArrayModel, DiagnosticStatusModel, KeyValueModel
from .webhook import WebhookPublisher
