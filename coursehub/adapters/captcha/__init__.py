"""Captcha verification adapters."""

from coursehub.adapters.captcha.base import AbstractCaptchaVerifier
from coursehub.adapters.captcha.factory import create_captcha_verifier
from coursehub.adapters.captcha.recaptcha import DisabledCaptchaVerifier, RecaptchaVerifier

__all__ = [
    "AbstractCaptchaVerifier",
    "DisabledCaptchaVerifier",
    "RecaptchaVerifier",
    "create_captcha_verifier",
]
