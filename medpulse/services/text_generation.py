"""Message text composition through the external text generation proxy."""

import asyncio
from abc import ABC, abstractmethod
from datetime import datetime
from enum import Enum

import httpx
import structlog
from pydantic import BaseModel

from medpulse.config import settings
from medpulse.schemas.appointments import Appointment
from medpulse.schemas.patients import Patient

logger = structlog.get_logger(__name__)


class TextGenerationError(Exception):
    """The text generation collaborator could not produce text."""


class TextSource(str, Enum):
    """Where a piece of message text came from."""

    GENERATED = "generated"
    FALLBACK = "fallback"


class GeneratedText(BaseModel):
    """Typed outcome of a composition: generated text or the fixed fallback."""

    text: str
    source: TextSource

    model_config = {"frozen": True}

    @classmethod
    def ok(cls, text: str) -> "GeneratedText":
        return cls(text=text, source=TextSource.GENERATED)

    @classmethod
    def fallback(cls, text: str) -> "GeneratedText":
        return cls(text=text, source=TextSource.FALLBACK)

    @property
    def is_fallback(self) -> bool:
        return self.source == TextSource.FALLBACK


class TextGenerator(ABC):
    """External collaborator turning a prompt into text."""

    @abstractmethod
    async def generate(self, prompt: str) -> str:
        """
        Generate text for a prompt.

        Raises:
            TextGenerationError: If no text could be produced
        """


class HttpTextGenerator(TextGenerator):
    """Client for the clinic's text generation proxy.

    The proxy accepts ``{"prompt": ...}`` and answers with a Gemini-style
    payload; the first candidate's first part is the text.
    """

    def __init__(self, url: str, timeout: float = 10.0):
        self.url = url
        self.timeout = timeout

    async def generate(self, prompt: str) -> str:
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            try:
                response = await client.post(self.url, json={"prompt": prompt})
                response.raise_for_status()
                data = response.json()
                text = data["candidates"][0]["content"]["parts"][0]["text"]
            except (httpx.HTTPError, KeyError, IndexError, TypeError, ValueError) as e:
                raise TextGenerationError(f"Text generation proxy failed: {e!s}") from e

        if not isinstance(text, str) or not text.strip():
            raise TextGenerationError("Text generation proxy returned no text")
        return text.strip()


class DisabledTextGenerator(TextGenerator):
    """Used when no proxy is configured; every composition falls back."""

    async def generate(self, prompt: str) -> str:
        raise TextGenerationError("Text generation is not configured")


def get_text_generator() -> TextGenerator:
    """Build the generator configured for this deployment."""
    if settings.text_generation_url:
        return HttpTextGenerator(
            settings.text_generation_url,
            timeout=settings.text_generation_timeout_seconds,
        )
    return DisabledTextGenerator()


def format_appointment_time(value: datetime) -> str:
    """Human readable appointment time used in prompts and fallbacks."""
    return value.strftime("%b %d, %Y at %I:%M %p")


class MessageComposer:
    """Builds deterministic prompts and substitutes fixed text on failure."""

    def __init__(
        self,
        generator: TextGenerator,
        timeout_seconds: float | None = None,
        clinic_name: str | None = None,
    ):
        self.generator = generator
        if timeout_seconds is None:
            timeout_seconds = settings.text_generation_timeout_seconds
        self.timeout_seconds = timeout_seconds
        self.clinic_name = clinic_name or settings.clinic_name

    async def compose(self, prompt: str, fallback: str) -> GeneratedText:
        """
        Ask the generator for text, bounded in time, with no retry.

        Args:
            prompt: Deterministic prompt
            fallback: Fixed text used when generation fails

        Returns:
            Generated text, or the fallback marked as such
        """
        try:
            text = await asyncio.wait_for(
                self.generator.generate(prompt),
                timeout=self.timeout_seconds,
            )
        except Exception as e:
            logger.warning(
                "text_generation_failed",
                error=str(e) or e.__class__.__name__,
            )
            return GeneratedText.fallback(fallback)

        if not text or not text.strip():
            logger.warning("text_generation_empty")
            return GeneratedText.fallback(fallback)

        return GeneratedText.ok(text)

    async def confirmation(self, appointment: Appointment, patient: Patient) -> GeneratedText:
        when = format_appointment_time(appointment.date_time)
        prompt = (
            f"Write a short, warm confirmation message for {patient.name}. "
            f"Their {appointment.type.value} appointment at {self.clinic_name} "
            f"is confirmed for {when}. Keep it suitable for WhatsApp."
        )
        fallback = (
            f"Your appointment for {appointment.type.value} has been scheduled for "
            f"{when}. We look forward to seeing you!"
        )
        return await self.compose(prompt, fallback)

    async def verification_request(
        self,
        appointment: Appointment,
        patient: Patient,
    ) -> GeneratedText:
        when = format_appointment_time(appointment.date_time)
        prompt = (
            f"Write a short, polite message for {patient.name}. The time they suggested "
            f"for their {appointment.type.value} appointment at {self.clinic_name} is full. "
            f"Offer {when} instead and ask them to reply to confirm."
        )
        fallback = (
            f"The time you have chosen is full, your new appointment for "
            f"{appointment.type.value} is {when}. Please reply to confirm so we can "
            "fix your new appointment."
        )
        return await self.compose(prompt, fallback)

    async def reminder(
        self,
        appointment: Appointment,
        patient: Patient,
        lead_time: str,
    ) -> GeneratedText:
        when = format_appointment_time(appointment.date_time)
        prompt = (
            f"Write a short, professional appointment reminder for {patient.name}. "
            f"Appointment: {appointment.type.value}. Time: {when}. "
            f"Lead time: {lead_time} before the appointment. Clinic: {self.clinic_name}. "
            "Ask them to arrive 10 minutes early."
        )
        fallback = (
            f"Friendly reminder: You have a {appointment.type.value} appointment on "
            f"{when} at {self.clinic_name}."
        )
        return await self.compose(prompt, fallback)

    async def welcome(self, patient: Patient) -> GeneratedText:
        prompt = (
            f"Write a warm, professional welcome message for a new patient named "
            f"{patient.name} at {self.clinic_name} clinic."
        )
        fallback = f"Welcome to {self.clinic_name}, {patient.name}! We are happy to have you."
        return await self.compose(prompt, fallback)

    async def care_instructions(self, summary: str, results: str) -> GeneratedText:
        prompt = (
            "Based on the following session notes and results, generate a concise list "
            "of home care instructions for the patient.\n"
            f"Notes: {summary}\n"
            f"Results: {results}\n"
            "Format as a simple bulleted list."
        )
        fallback = "Follow general wellness guidelines and stay hydrated."
        return await self.compose(prompt, fallback)
