"""Default user-visible messages (English)."""

PLEASE_ENTER_A_VALID_VALUE = "Please enter a valid value for this field."
PLEASE_ENTER_VALID_VALUES = "Please enter valid values for this field."
UP_TO_N_VALUES_ARE_ALLOWED = "Up to {0} values are allowed."
AT_MOST_N_CHARACTERS = "Please enter a valid value with at most {0} characters for this field."
AT_MOST_ONE_CHARACTER = "Please enter a valid value with at most one character for this field."
NUMBER_BETWEEN = "Please enter a number between {0} and {1} for this field."
NUMBER_AT_LEAST = "Please enter a number of at least {0} for this field."
NUMBER_AT_MOST = "Please enter a number of at most {0} for this field."
PLEASE_SELECT_A_VALUE = "Please select a value for this field."

THIS_IS_A_MANDATORY_FIELD = "This is a mandatory field."
YOU_CAN_LEAVE_BLANK_FOR_NOW = "Alternatively you can leave this field blank for now."
YOU_CAN_LEAVE_BLANK = "Alternatively you can leave this field blank."

FORM_ERROR = "Please correct the errors below."
