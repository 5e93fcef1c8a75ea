import json
import time
from kycflow.settings import settings

# Field names whose values never reach stdout in clear text
SENSITIVE_KEYS = {
    "password",
    "otp",
    "cardNumber",
    "cvv",
    "expiryDate",
    "birthDate",
    "address",
    "email",
}

def _redact_value(v):
    if isinstance(v, str) and len(v) > 0:
        return f"[REDACTED:{len(v)}chars]"
    if isinstance(v, dict):
        return {k: _redact_value(val) for k, val in v.items()}
    return v

def log(event: str, level: str = "info", **fields):
    payload = {"ts": int(time.time()), "event": event, "level": level}

    if settings.ENABLE_PII_REDACTION:
        clean_fields = {}
        for k, v in fields.items():
            if k in SENSITIVE_KEYS:
                clean_fields[k] = _redact_value(v)
            elif isinstance(v, dict):
                # Form payloads: redact only the sensitive entries
                clean_fields[k] = {sk: (_redact_value(sv) if sk in SENSITIVE_KEYS else sv) for sk, sv in v.items()}
            else:
                clean_fields[k] = v
        payload.update(clean_fields)
    else:
        payload.update(fields)

    print(json.dumps(payload, ensure_ascii=False, default=str))
