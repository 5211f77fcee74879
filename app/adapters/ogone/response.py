"""Decoding and normalization of Ogone DirectLink XML replies."""

from typing import Any, Dict, Optional, Union
from xml.parsers.expat import ExpatError

import xmltodict

from ..exceptions import PaymentProcessingError

SUCCESS_MESSAGE = "The transaction was successful"

CVV_MAPPING = {"OK": "M", "KO": "N", "NO": "P"}

AVS_MAPPING = {"OK": "M", "KO": "N", "NO": "R"}

HTML_ANSWER = "HTML_ANSWER"


def _element_text(element: Any) -> Optional[str]:
    if isinstance(element, dict):
        return element.get("#text")
    return element


def parse_response(body: Union[bytes, str]) -> Dict[str, Any]:
    """Map the root element's attributes (plus ``HTML_ANSWER``) to a dict.

    ``HTML_ANSWER`` only appears in 3-D Secure flows. It holds the
    identification page to show to the cardholder and is an element, not
    an attribute, so it is merged in separately: the first one in document
    order wins, and an empty element maps to ``None``.

    Pass the raw bytes so the encoding declared in the XML prolog is used.
    """
    html_answers = []

    def collect_html_answer(path, key, value):
        # Elements are reported as they close, so an enclosing HTML_ANSWER
        # is taken over any nested one.
        if key == HTML_ANSWER and not html_answers and not any(
            name == HTML_ANSWER for name, _ in path[:-1]
        ):
            html_answers.append(_element_text(value))
        return key, value

    try:
        document = xmltodict.parse(body, postprocessor=collect_html_answer)
    except ExpatError as exc:
        raise PaymentProcessingError(f"Malformed gateway reply: {exc}") from exc
    root = next(iter(document.values()))

    response: Dict[str, Any] = {}
    if isinstance(root, dict):
        for key, value in root.items():
            if key.startswith("@"):
                response[key[1:]] = value
    if html_answers:
        response[HTML_ANSWER] = html_answers[0]

    return response


def is_successful(response: Dict[str, Any]) -> bool:
    return response.get("NCERROR") == "0"


def format_error_message(message: Optional[str]) -> str:
    raw_message = (message or "").strip()
    if "|" in raw_message:
        return ", ".join(raw_message.split("|")).capitalize()
    if "/" in raw_message:
        return raw_message.split("/")[0].capitalize()
    return raw_message.capitalize()


def message_from(response: Dict[str, Any]) -> str:
    if is_successful(response):
        return SUCCESS_MESSAGE
    return format_error_message(response.get("NCERRORPLUS"))
