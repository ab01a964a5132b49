"""
Eligibility checker - reports objects created before the instance-extension
chain was complete.
"""

import logging
from typing import Any, Optional

from ..di.core import Role
from ..di.diagnostics import DIDiagnostics, DIEventType
from .capabilities import InstanceExtension

logger = logging.getLogger("strix.extensions.checker")


class EligibilityChecker(InstanceExtension):
    """
    Installed first by the instance-extension installer.

    Any regular object finishing initialization while the chain is still
    shorter than ``target_count`` missed some extensions (it was built to
    satisfy an extension's own dependencies). Reported, never raised.
    """

    def __init__(
        self,
        factory: Any,
        target_count: int,
        diagnostics: Optional[DIDiagnostics] = None,
        *,
        enabled: bool = True,
    ):
        self.factory = factory
        self.target_count = target_count
        self.diagnostics = diagnostics or factory.diagnostics
        self.enabled = enabled
        self.reported: list = []

    def after_init(self, bean: Any, name: str) -> Any:
        if (
            self.enabled
            and not isinstance(bean, InstanceExtension)
            and not self._is_infrastructure(name)
            and self.factory.instance_extension_count < self.target_count
        ):
            self.reported.append(name)
            logger.info(
                f"Object '{name}' of type [{type(bean).__module__}.{type(bean).__qualname__}] "
                f"is not eligible for getting processed by all instance extensions "
                f"(created while only {self.factory.instance_extension_count} of "
                f"{self.target_count} were installed)"
            )
            self.diagnostics.emit(
                DIEventType.INELIGIBLE_BEAN,
                name=name,
                metadata={
                    "installed": self.factory.instance_extension_count,
                    "target": self.target_count,
                },
            )
        return bean

    def _is_infrastructure(self, name: str) -> bool:
        if name and self.factory.contains_definition(name):
            return self.factory.get_definition(name).role == Role.INFRASTRUCTURE
        return False

    def __repr__(self) -> str:
        return f"EligibilityChecker(target_count={self.target_count})"
