"""
User Management Use Cases

All user-related business logic.
"""

from .complete_onboarding_use_case import CompleteOnboardingUseCase, OnboardingResponse

__all__ = [
    "CompleteOnboardingUseCase",
    "OnboardingResponse",
]
