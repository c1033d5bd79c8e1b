"""Task prompts handed to the reasoning engine for each activity tick."""

from __future__ import annotations

ACTIVITY_PROMPTS: dict[str, str] = {
    "risk_analysis": (
        "Run the risk event triage:\n"
        "1. Use the query_data tool to fetch pending risk events "
        "(sql_id: pending_risk_events, params: batch_size=5)\n"
        "2. Trace each risk event back through the related access records and HTTP traffic\n"
        "3. Decide whether the event is a real risk\n"
        "4. Confirm or ignore each event according to the configured mode\n"
        "\n"
        "Start the risk triage now."
    ),
    "weak_analysis": (
        "Run the weakness event analysis:\n"
        "1. Use the query_data tool to fetch pending weakness events "
        "(sql_id: pending_weak_events, params: batch_size=5)\n"
        "2. Fetch the HTTP traffic that triggered each weakness\n"
        "3. Decide whether the finding is a false positive\n"
        "4. Confirm or ignore each event according to the configured mode\n"
        "\n"
        "Start the weakness analysis now."
    ),
    "api_biz_explain": (
        "Run the API business analysis:\n"
        "1. Use the query_data tool to fetch APIs awaiting analysis "
        "(sql_id: pending_api_list, params: batch_size=3)\n"
        "2. Fetch a request and response sample for each API\n"
        "3. Describe the business meaning, parameters and importance level of each API\n"
        "4. Register the business and its protection policy\n"
        "\n"
        "Start the API business analysis now."
    ),
    "app_explain": (
        "Run the application identification:\n"
        "1. Use the query_data tool to fetch applications awaiting identification "
        "(sql_id: pending_app_list, params: batch_size=3)\n"
        "2. Fetch the API list of each application\n"
        "3. Work out the application name and business description\n"
        "4. Create or update the application record\n"
        "\n"
        "Start the application identification now."
    ),
}

_GENERIC_PROMPT = "Run the security operations activity: {name}"

MODE_INSTRUCTIONS: dict[str, str] = {
    "auto": (
        "Mode: auto. Apply each decision directly with the sheikah_api tool "
        "(for example confirm_risk or ignore_risk)."
    ),
    "manual": (
        "Mode: manual. Do not call sheikah_api to apply decisions. File one "
        "proposal per decision with the propose_action tool so an operator "
        "can accept or ignore it."
    ),
}


def build_prompt(name: str, mode: str = "manual") -> str:
    """Build the task prompt for activity *name* running in *mode*.

    Unknown activity names get a generic prompt naming the activity; unknown
    modes add no mode line.
    """
    prompt = ACTIVITY_PROMPTS.get(name) or _GENERIC_PROMPT.format(name=name)
    instruction = MODE_INSTRUCTIONS.get(mode)
    if instruction:
        prompt = f"{prompt}\n\n{instruction}"
    return prompt
