"""Use case for loading a rate rules script into a rule table."""

import logging
from decimal import Decimal
from typing import Optional

from app.core.config import Settings, get_settings
from app.rate_engine.application.exceptions import InvalidRateRulesError
from app.rate_engine.domain.exceptions import (
    RateRulesParseError,
    RateRulesValidationError,
)
from app.rate_engine.domain.services.rate_rules import RateRules

logger = logging.getLogger(__name__)


class LoadRateRulesUseCase:
    """Application service that builds RateRules from script text.

    Falls back to the configured script, and then to the default
    ``X_X = <preferred_exchange>(X_X);`` script, when no text is given.
    """

    def __init__(self, settings: Optional[Settings] = None) -> None:
        """Initialize the use case.

        Args:
            settings: Application settings. Defaults to the cached settings.
        """
        self._settings = settings or get_settings()

    def execute(
        self,
        script: Optional[str] = None,
        global_multiplier: Optional[Decimal] = None,
    ) -> RateRules:
        """Parse and validate a rule script.

        Args:
            script: Rule script text, or None to use the configured script.
            global_multiplier: Factor applied to every rule, or None to use
                the configured multiplier.

        Returns:
            The validated RateRules.

        Raises:
            InvalidRateRulesError: If the script has syntax or rule errors.
        """
        if script is None or not script.strip():
            script = self._settings.effective_rate_rules_script
        if global_multiplier is None:
            global_multiplier = self._settings.global_multiplier

        try:
            rules = RateRules.parse(script, global_multiplier=global_multiplier)
        except RateRulesParseError as e:
            logger.warning(f"Rate rules script rejected: {e.message}")
            raise InvalidRateRulesError(e.message) from e
        except RateRulesValidationError as e:
            logger.warning(f"Rate rules script rejected: {e.message}")
            raise InvalidRateRulesError(
                "script contains invalid rules",
                errors=[str(error) for error in e.errors],
            ) from e
        except ValueError as e:
            raise InvalidRateRulesError(str(e)) from e

        logger.info(
            f"Rate rules ready: {len(rules.rules)} rules, "
            f"global multiplier {rules.global_multiplier}"
        )
        return rules
