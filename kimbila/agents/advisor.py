"""
Business Advisor Agent

Asks Gemini for a few short, practical tips based on a snapshot of the
shop's catalog, recent sales and outstanding debts.

CRITICAL BOUNDARIES:
- The advisor only ever sees an AdviceSnapshot (names and amounts)
- Its answer is free text shown to the user as-is; nothing in the
  ledger reads or acts on it
- It NEVER raises: any failure becomes a fixed fallback message
"""

import asyncio
import json
from typing import Any, Optional

import google.generativeai as genai
import structlog

from kimbila.audit import AuditLogger
from kimbila.config import AppSettings, GeminiSettings, get_settings
from kimbila.models.ledger import AdviceSnapshot


logger = structlog.get_logger(__name__)


FALLBACK_NO_TIPS = "No tips right now. Keep up the good selling!"
FALLBACK_ERROR = (
    "Something went wrong while asking the business advisor. "
    "Check your connection and try again."
)


class BusinessAdvisorAgent:
    """
    AI agent that turns a ledger snapshot into business advice.

    RESPONSIBILITIES:
    - Build a compact prompt from the snapshot
    - Call the model with a time limit
    - Return the text, or a fallback message

    BOUNDARIES:
    - NEVER touches the ledger
    - NEVER retries; the user can simply ask again
    """

    def __init__(
        self,
        settings: Optional[GeminiSettings] = None,
        app_settings: Optional[AppSettings] = None,
        model: Optional[Any] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._settings = settings or get_settings().gemini
        self._app_settings = app_settings or get_settings().app
        self._audit_logger = audit_logger
        if model is not None:
            self._model = model
        else:
            self._configure_genai()

    def _configure_genai(self):
        """Configure Google Generative AI."""
        genai.configure(api_key=self._settings.api_key)
        self._model = genai.GenerativeModel(
            model_name=self._settings.model_name,
            generation_config={
                "temperature": self._settings.temperature,
                "top_p": self._settings.top_p,
                "max_output_tokens": self._settings.max_tokens,
            }
        )

    def build_prompt(self, snapshot: AdviceSnapshot) -> str:
        """
        Build the advisor prompt.

        Data is sent as short-keyed JSON to keep the prompt small:
        n = name, s = stock, p = price, t = total, c = customer, v = amount.
        """
        products = [
            {"n": p.name, "s": p.stock, "p": float(p.price)}
            for p in snapshot.products
        ]
        sales = [
            {"n": s.product_name, "t": float(s.total)}
            for s in snapshot.recent_sales
        ]
        debts = [
            {"c": d.customer_name, "v": float(d.amount)}
            for d in snapshot.pending_debts
        ]
        language = self._app_settings.advice_language

        return f"""You are a financial advisor who specialises in small informal businesses (street vendors, canteens, barbers).
Analyse the data of the business "{snapshot.business_name}":

Products: {json.dumps(products, ensure_ascii=False)}
Recent sales: {json.dumps(sales, ensure_ascii=False)}
Pending debts: {json.dumps(debts, ensure_ascii=False)}

Give 3 short, practical tips in {language} to improve profit or manage the business better.
Use simple, direct language. Return a Markdown list."""

    async def generate_advice(self, snapshot: AdviceSnapshot) -> str:
        """
        Ask the model for advice.

        Returns the model's text, FALLBACK_NO_TIPS if it answered with
        nothing, or FALLBACK_ERROR on any error or timeout.
        """
        prompt = self.build_prompt(snapshot)

        try:
            response = await asyncio.wait_for(
                self._model.generate_content_async(prompt),
                timeout=self._settings.timeout_seconds,
            )
            text = (response.text or "").strip()
        except Exception as e:
            # Timeouts, network errors, blocked responses
            error_message = f"{type(e).__name__}: {e}"
            logger.warning("advice_generation_failed", error=error_message)
            if self._audit_logger:
                self._audit_logger.log_advice_failed(error_message)
            return FALLBACK_ERROR

        if not text:
            return FALLBACK_NO_TIPS

        if self._audit_logger:
            self._audit_logger.log_advice_generated(len(text))
        return text
