class QueryKeys:
    """Query-string parameters understood by flow pages."""

    TAB_ID = "tid"
    RESTARTED = "restarted"
    LANG = "lang"
    PATH = "path"


class FormKeys:
    """Form fields posted by flow pages."""

    ACTION = "action"


class StateKeys:
    """Keys for data stored in the session container / ``st.session_state``."""

    IN_PERSON_FLOW = "in_person_flow"
    SESSION_ID = "session_id"
    LANG = "lang"
    TAB_ID = "tab_id"
    LAST_ERROR = "flow.last_error"
