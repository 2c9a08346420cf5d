import hashlib
import re

E164_PATTERN = re.compile(r"^\+?[1-9]\d{1,14}$")


def to_e164(phone: str) -> str:
	"""Normalise a raw phone string to E.164, assuming UK for national numbers.

	Returns an empty string when no digits are present.
	"""
	cleaned = re.sub(r"\D", "", phone or "")
	if not cleaned:
		return ""
	if cleaned.startswith("44"):
		return f"+{cleaned}"
	if cleaned.startswith("0") and len(cleaned) >= 10:
		return f"+44{cleaned[1:]}"
	return f"+{cleaned}"


def uk_local_to_e164(phone: str) -> str:
	if phone.startswith("0"):
		return "+44" + phone[1:]
	return phone


def format_for_display(phone_e164: str) -> str:
	"""UK numbers back to national format ("07700 900123"); anything else unchanged."""
	cleaned = re.sub(r"\D", "", phone_e164 or "")
	if cleaned.startswith("44"):
		local = cleaned[2:]
		if local.startswith("7") and len(local) == 10:
			return f"0{local[:5]} {local[5:]}"
		return f"0{local}"
	return phone_e164


def is_e164(phone: str) -> bool:
	return bool(E164_PATTERN.match((phone or "").strip()))


def dedupe_hash(phone_e164: str) -> str:
	return hashlib.sha256(phone_e164.encode("utf-8")).hexdigest()
