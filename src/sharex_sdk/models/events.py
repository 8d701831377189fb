"""
Action and lifecycle event names.
"""

DB_ACTION_PREFIX = "db_action_"


class C2SAction:
    """Client → host actions."""
    INIT_USER = "init_user"
    UPDATE_USER_DATA = "update_user_data"
    GET_ALL_USERS = "get_all_users"
    SEND_MSG = "send_msg"
    GET_PUBLIC_DATA_OF_USER = "get_public_data_of_user"
    CREATE_JSON_FILE = "create_json_file"
    READ_JSON_FILE = "read_json_file"


class S2CAction:
    """Host → client actions."""
    RETURN_ALL_USERS = "return_all_users"
    USER_ARRIVE = "user_arrive"
    USER_LEFT = "user_left"
    MSG_ARRIVE = "msg_arrive"
    RETURN_PUBLIC_DATA_OF_USER = "return_public_data_of_user"
    RETURN_CREATE_JSON_FILE = "return_create_json_file"
    RETURN_READ_JSON_FILE = "return_read_json_file"


class DBAction:
    """Store actions, without DB_ACTION_PREFIX."""
    INIT_DB = "init_db"
    INIT_DB_RESULT = "init_db_result"
    INSERT_DATA = "insert_data"
    INSERT_DATA_BULK = "insert_data_bulk"
    INSERT_DATA_RESULT = "insert_data_result"
    GET_ALL_DATA = "get_all_data"
    GET_ALL_DATA_RESULT = "get_all_data_result"
    GET_DATA = "get_data"
    GET_DATA_RESULT = "get_data_result"
    UPDATE_DATA = "update_data"
    UPDATE_DATA_RESULT = "update_data_result"
    DELETE_DATA = "delete_data"
    DELETE_DATA_RESULT = "delete_data_result"

    @staticmethod
    def wire(action: str) -> str:
        return f"{DB_ACTION_PREFIX}{action}"


class LifecycleEvent:
    """Tags reported to the caller's event handler besides push notifications."""
    OPEN = "open"
    RECONNECT = "reconnect"
    CLOSE = "close"
    ERROR = "error"


# Push notifications forwarded straight to the event handler
PUSH_ACTIONS = {S2CAction.USER_ARRIVE, S2CAction.USER_LEFT, S2CAction.MSG_ARRIVE}
