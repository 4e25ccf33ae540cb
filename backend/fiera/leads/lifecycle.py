"""
Lead Follow-up State Machine

Status transitions for the studio's follow-up of a quote request,
using the transitions library. Pure validation, no DB/IO.
"""

from typing import List, Tuple, Union

from transitions import Machine

from fiera.leads.models import LeadStatus

STATES = [status.value for status in LeadStatus]

TRANSITIONS = [
    {"trigger": "contact",    "source": "new",                          "dest": "contacted"},
    {"trigger": "send_email", "source": ["new", "contacted"],           "dest": "email_sent"},
    {"trigger": "send_quote", "source": ["new", "contacted", "email_sent"], "dest": "quoted"},
    {"trigger": "close",      "source": ["new", "contacted", "email_sent", "quoted"], "dest": "closed"},
    {"trigger": "reopen",     "source": "closed",                       "dest": "contacted"},
]

TRIGGERS = [t["trigger"] for t in TRANSITIONS]

TERMINAL_STATES = {"closed"}


class LeadLifecycle:
    """Lead follow-up state machine (validation only, no IO)"""

    def __init__(self, initial_state: Union[str, LeadStatus] = LeadStatus.NEW):
        if isinstance(initial_state, LeadStatus):
            initial_state = initial_state.value
        self.machine = Machine(
            model=self,
            states=STATES,
            transitions=TRANSITIONS,
            initial=initial_state,
            auto_transitions=False,
            send_event=False,
        )

    def try_trigger(self, trigger_name: str) -> Tuple[bool, str]:
        """
        Attempt a transition.

        Returns:
            (True, new_state) on success
            (False, error_message) on failure
        """
        if trigger_name not in TRIGGERS:
            return False, f"Unknown trigger: {trigger_name}"

        available = self.machine.get_triggers(self.state)
        if trigger_name not in available:
            return False, f"Cannot '{trigger_name}' from state '{self.state}'"

        getattr(self, trigger_name)()
        return True, self.state

    def get_available_triggers(self) -> List[str]:
        return [t for t in self.machine.get_triggers(self.state) if t in TRIGGERS]

    @property
    def status(self) -> LeadStatus:
        return LeadStatus(self.state)

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES
