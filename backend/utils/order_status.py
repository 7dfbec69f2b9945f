# Allowed order status changes. The storage layer accepts any status value;
# routes use this graph to decide which changes a caller may request.
TRANSITIONS = {
    "pending": {"confirmed", "cancelled"},
    "confirmed": {"shipped", "cancelled"},
    "shipped": {"delivered"},
    "delivered": set(),
    "cancelled": set(),
}

def is_terminal(status: str) -> bool:
    return not TRANSITIONS.get(status)

def can_transition(old_status: str, new_status: str) -> bool:
    return new_status in TRANSITIONS.get(old_status, set())
