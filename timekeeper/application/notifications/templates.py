"""Email template catalog and the placeholder substitution engine.

Templates use ``{{name}}`` placeholders and ``{{#if name}}...{{/if}}`` blocks.
A placeholder whose variable is missing renders as an empty string; an ``if``
block keeps its body only when the variable is present and non-empty. Values
inserted into the HTML body are escaped.
"""

from __future__ import annotations

import html
import re
from collections.abc import Mapping, Sequence
from datetime import date
from textwrap import dedent
from typing import Any, Final

from timekeeper.domain.entities import EmailTemplate, RenderedContent
from timekeeper.utils import now_in_app_timezone

DEFAULT_TEMPLATE_ID: Final[str] = "default"

_PLACEHOLDER: Final[re.Pattern[str]] = re.compile(r"\{\{\s*(\w+)\s*\}\}")
_CONDITIONAL: Final[re.Pattern[str]] = re.compile(
    r"\{\{#if\s+(\w+)\s*\}\}(.*?)\{\{/if\}\}", re.DOTALL
)
_VARIABLE_NAME: Final[re.Pattern[str]] = re.compile(r"\{\{(?:#if)?\s*(\w+)\s*\}\}")

_BASE_STYLE = """
    body { font-family: Arial, sans-serif; line-height: 1.6; color: #333; }
    .container { max-width: 600px; margin: 0 auto; padding: 20px; }
"""


def _template(
    template_id: str, name: str, subject: str, html_body: str, text_body: str
) -> EmailTemplate:
    html_body = dedent(html_body).strip()
    text_body = dedent(text_body).strip()
    variables = frozenset(
        _VARIABLE_NAME.findall(subject)
        + _VARIABLE_NAME.findall(html_body)
        + _VARIABLE_NAME.findall(text_body)
    )
    return EmailTemplate(
        id=template_id,
        name=name,
        subject=subject,
        html=html_body,
        text=text_body,
        variables=variables,
    )


DEFAULT_TEMPLATES: Final[tuple[EmailTemplate, ...]] = (
    _template(
        DEFAULT_TEMPLATE_ID,
        "Default Template",
        "{{subject}}",
        """
        <!DOCTYPE html>
        <html>
        <head>
          <meta charset="utf-8">
          <title>{{subject}}</title>
          <style>"""
        + _BASE_STYLE
        + """
            .header { background: #3B82F6; color: white; padding: 20px; text-align: center; }
            .content { padding: 20px; background: #f9f9f9; }
            .footer { text-align: center; padding: 20px; color: #666; font-size: 12px; }
          </style>
        </head>
        <body>
          <div class="container">
            <div class="header"><h1>{{companyName}}</h1></div>
            <div class="content">
              <h2>{{subject}}</h2>
              <p>{{message}}</p>
              {{#if actionUrl}}<p><a href="{{actionUrl}}">{{actionText}}</a></p>{{/if}}
            </div>
            <div class="footer">
              <p>This email was sent from {{companyName}}</p>
              <p>If you have any questions, please contact support.</p>
            </div>
          </div>
        </body>
        </html>
        """,
        """
        {{subject}}

        {{message}}
        {{#if actionUrl}}
        {{actionText}}: {{actionUrl}}
        {{/if}}
        ---
        {{companyName}}
        """,
    ),
    _template(
        "minimal",
        "Minimal Template",
        "{{subject}}",
        """
        <!DOCTYPE html>
        <html>
        <head>
          <meta charset="utf-8">
          <title>{{subject}}</title>
          <style>"""
        + _BASE_STYLE
        + """
          </style>
        </head>
        <body>
          <div class="container">
            <h2>{{subject}}</h2>
            <p>{{message}}</p>
          </div>
        </body>
        </html>
        """,
        """
        {{subject}}

        {{message}}
        """,
    ),
    _template(
        "detailed",
        "Detailed Template",
        "{{subject}}",
        """
        <!DOCTYPE html>
        <html>
        <head>
          <meta charset="utf-8">
          <title>{{subject}}</title>
          <style>"""
        + _BASE_STYLE
        + """
            .header { background: linear-gradient(135deg, #3B82F6, #1D4ED8); color: white; padding: 30px; text-align: center; }
            .content { padding: 30px; background: white; border: 1px solid #e5e7eb; }
            .info-box { background: #f0f9ff; border: 1px solid #0ea5e9; border-radius: 6px; padding: 15px; margin: 15px 0; }
            .footer { background: #f9fafb; padding: 20px; text-align: center; }
          </style>
        </head>
        <body>
          <div class="container">
            <div class="header">
              <h1>{{companyName}}</h1>
              <p>{{tagline}}</p>
            </div>
            <div class="content">
              <h2>{{subject}}</h2>
              <p>{{message}}</p>
              {{#if details}}<div class="info-box"><h3>Details:</h3><p>{{details}}</p></div>{{/if}}
              {{#if actionUrl}}<p><a href="{{actionUrl}}">{{actionText}}</a></p>{{/if}}
              {{#if additionalInfo}}<p><strong>Additional Information:</strong></p><p>{{additionalInfo}}</p>{{/if}}
            </div>
            <div class="footer">
              <p><strong>{{companyName}}</strong></p>
              <p><small>This email was sent to {{recipientEmail}} on {{date}}</small></p>
            </div>
          </div>
        </body>
        </html>
        """,
        """
        {{subject}}

        {{message}}
        {{#if details}}
        Details:
        {{details}}
        {{/if}}{{#if actionUrl}}
        {{actionText}}: {{actionUrl}}
        {{/if}}{{#if additionalInfo}}
        Additional Information:
        {{additionalInfo}}
        {{/if}}
        ---
        {{companyName}}
        Sent to: {{recipientEmail}} on {{date}}
        """,
    ),
    _template(
        "timesheet_reminder",
        "Timesheet Reminder",
        "Timesheet Reminder - {{date}}",
        """
        <!DOCTYPE html>
        <html>
        <head>
          <meta charset="utf-8">
          <title>Timesheet Reminder</title>
          <style>"""
        + _BASE_STYLE
        + """
            .header { background: #10B981; color: white; padding: 20px; text-align: center; }
            .content { padding: 20px; background: #f9f9f9; }
            .footer { text-align: center; padding: 20px; color: #666; font-size: 12px; }
          </style>
        </head>
        <body>
          <div class="container">
            <div class="header"><h1>Timesheet Reminder</h1></div>
            <div class="content">
              <h2>Hello {{userName}},</h2>
              <p>This is a friendly reminder to log your hours for <strong>{{date}}</strong>.</p>
              <p><strong>Today's Date:</strong> {{currentDate}}</p>
              <p><strong>Hours to log:</strong> {{hoursToLog}}</p>
              <p><a href="{{timesheetUrl}}">Log Hours Now</a></p>
              <p>If you have any questions, please contact your manager.</p>
            </div>
            <div class="footer">
              <p>This reminder was sent automatically by {{companyName}}</p>
            </div>
          </div>
        </body>
        </html>
        """,
        """
        Timesheet Reminder - {{date}}

        Hello {{userName}},

        This is a friendly reminder to log your hours for {{date}}.

        Today's Date: {{currentDate}}
        Hours to log: {{hoursToLog}}

        Log Hours Now: {{timesheetUrl}}

        If you have any questions, please contact your manager.

        ---
        {{companyName}}
        """,
    ),
)


def format_display_date(value: date) -> str:
    """Format ``value`` the way dates appear in emails (``M/D/YYYY``)."""

    return f"{value.month}/{value.day}/{value.year}"


def _stringify(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def _substitute(pattern: str, variables: Mapping[str, str], *, escape: bool) -> str:
    def resolve_block(match: re.Match[str]) -> str:
        return match.group(2) if variables.get(match.group(1)) else ""

    def resolve_placeholder(match: re.Match[str]) -> str:
        value = variables.get(match.group(1), "")
        return html.escape(value) if escape else value

    resolved = _CONDITIONAL.sub(resolve_block, pattern)
    return _PLACEHOLDER.sub(resolve_placeholder, resolved)


class TemplateEngine:
    """Render catalog templates into subject, HTML and text bodies."""

    def __init__(
        self,
        *,
        company_name: str,
        templates: Sequence[EmailTemplate] = DEFAULT_TEMPLATES,
        fallback_id: str = DEFAULT_TEMPLATE_ID,
    ) -> None:
        self.company_name = company_name
        self._templates = {template.id: template for template in templates}
        if fallback_id not in self._templates:
            msg = f"Fallback template '{fallback_id}' is not part of the catalog"
            raise ValueError(msg)
        self._fallback_id = fallback_id

    def list_templates(self) -> list[EmailTemplate]:
        return list(self._templates.values())

    def get(self, template_id: str | None) -> EmailTemplate:
        """Return the template for ``template_id`` or the fallback template."""

        if template_id and template_id in self._templates:
            return self._templates[template_id]
        return self._templates[self._fallback_id]

    def render(
        self,
        template_id: str | None,
        variables: Mapping[str, Any] | None = None,
        *,
        recipient_email: str | None = None,
        today: date | None = None,
    ) -> RenderedContent:
        """Render ``template_id`` with ``variables``.

        ``date``, ``currentDate``, ``companyName`` and ``recipientEmail`` are
        always available; explicit ``variables`` take precedence over them.
        The output depends only on the arguments, so pass ``today`` to get
        reproducible results.
        """

        template = self.get(template_id)
        display_date = format_display_date(today or now_in_app_timezone().date())
        values: dict[str, str] = {
            "date": display_date,
            "currentDate": display_date,
            "companyName": self.company_name,
            "recipientEmail": recipient_email or "",
        }
        for key, value in (variables or {}).items():
            values[str(key)] = _stringify(value)

        return RenderedContent(
            subject=_substitute(template.subject, values, escape=False).strip(),
            html=_substitute(template.html, values, escape=True),
            text=_substitute(template.text, values, escape=False),
        )


__all__ = [
    "DEFAULT_TEMPLATES",
    "DEFAULT_TEMPLATE_ID",
    "TemplateEngine",
    "format_display_date",
]
