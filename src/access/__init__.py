"""Access — контроль доступа по ролям owner / multisig."""

from .role_gate import AccessCheckResult, Role, RoleGate

__all__ = [
    "AccessCheckResult",
    "Role",
    "RoleGate",
]
