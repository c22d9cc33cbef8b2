"""
IO module for assessment interfaces.

Provides text and voice interfaces for filling in the questionnaire.
"""

from neurosense.io.text_interface import TextInterface
from neurosense.io.voice_interface import VoiceInterface

__all__ = ["TextInterface", "VoiceInterface"]
