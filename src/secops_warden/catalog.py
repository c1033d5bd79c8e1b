"""Built-in query templates and action endpoints.

Configuration may add entries or override these by ID.
"""

from __future__ import annotations

from secops_warden.tools.action_api import EndpointSpec

DEFAULT_QUERIES: dict[str, str] = {
    "pending_risk_events": (
        "SELECT risk, host, content, ts FROM risk_events WHERE status = 'pending' "
        "ORDER BY ts DESC LIMIT $batch_size"
    ),
    "pending_weak_events": (
        "SELECT weak_name, host, method, url, channel FROM weak_events "
        "WHERE status = 'pending' ORDER BY ts DESC LIMIT $batch_size"
    ),
    "access_by_ip": (
        "SELECT ip, ts, method, url, status, req_risk FROM access WHERE ip = '$ip' "
        "AND ts > now() - INTERVAL 1 DAY ORDER BY ts DESC LIMIT 30"
    ),
    "access_by_user": (
        "SELECT ip, ts, method, url, status, req_risk FROM access WHERE uid = '$user_id' "
        "AND ts > now() - INTERVAL 1 DAY ORDER BY ts DESC LIMIT 30"
    ),
    "access_by_device": (
        "SELECT ip, ts, method, url, status, req_risk FROM access WHERE sid = '$device_id' "
        "AND ts > now() - INTERVAL 1 DAY ORDER BY ts DESC LIMIT 30"
    ),
    "http_details": "SELECT req, res FROM access_raw WHERE id = '$id' LIMIT 3",
    "risk_top20": (
        "SELECT risk, host, content, type, count() as cnt FROM risk_events "
        "WHERE ts > today() AND status = 'pending' GROUP BY risk, host, content, type "
        "ORDER BY cnt DESC LIMIT 20"
    ),
    "weak_http_sample": (
        "SELECT req, res FROM weak WHERE weak_name = '$weak_name' AND channel = '$channel' "
        "AND method = '$method' AND url = '$url' LIMIT 1"
    ),
    "pending_api_list": (
        "SELECT method, host, url, req, res, biz_type, channel FROM api_sample "
        "WHERE analyzed = 0 LIMIT $batch_size"
    ),
    "api_sample": (
        "SELECT method, host, url, req, res FROM api_sample WHERE host = '$host' "
        "AND url = '$url' LIMIT 1"
    ),
    "pending_app_list": (
        "SELECT app_id, host, api_list FROM app_sample WHERE analyzed = 0 LIMIT $batch_size"
    ),
    "app_api_list": "SELECT api_list FROM app_sample WHERE app_id = '$app_id' LIMIT 1",
}

_RISK_BODY = '[{"content": "$content", "host": "$host", "risk": "$risk", "note": "$note"}]'

_WEAK_BODY = (
    '{"tag": "%s", "apiWeakMgts": [{"defectId": "$weak_name", "host": "$host", '
    '"method": "$method", "url": "$url"}], "message": "$note"}'
)

DEFAULT_ENDPOINTS: dict[str, EndpointSpec] = {
    "confirm_risk": EndpointSpec(method="POST", path="/risk/confirm", body=_RISK_BODY),
    "ignore_risk": EndpointSpec(method="POST", path="/risk/filter", body=_RISK_BODY),
    "confirm_weak": EndpointSpec(
        method="POST", path="/apiweak/manage/batch", body=_WEAK_BODY % "todo"
    ),
    "ignore_weak": EndpointSpec(
        method="POST", path="/apiweak/manage/batch", body=_WEAK_BODY % "ignore"
    ),
    "create_business": EndpointSpec(
        method="POST",
        path="/antibot/api_data_property",
        body=(
            '{"method": "$method", "path": "$path", "host": "$host", "bizType": 0, '
            '"bizDesc": "$biz_desc", "bizLevel": $biz_level, "bizName": "$biz_name", '
            '"mode": 1, "ruleSet": []}'
        ),
    ),
    "save_api_analysis": EndpointSpec(
        method="POST",
        path="/antibot/internal_api/api_analysis",
        body=(
            '{"host": "$host", "method": "$method", "path": "$path", '
            '"biz_analysis": "$biz_analysis", "importance_analysis": "$importance_analysis", '
            '"param_analysis": "$param_analysis", "importance": "$importance", '
            '"skip_if_exist": true}'
        ),
    ),
    "create_app": EndpointSpec(
        method="POST",
        path="/antibot/internal_app",
        body=(
            '{"name": "$app_name", "domainList": ["$host"], "urlPrefix": "/", '
            '"isMirror": true, "desc": "$app_desc"}'
        ),
    ),
    "update_app": EndpointSpec(
        method="PUT", path="/antibot/internal_app/$app_id", body='{"desc": "$app_desc"}'
    ),
    "create_proposal": EndpointSpec(
        method="POST",
        path="/secops/proposal",
        body='{"type": "$type", "title": "$title", "content": "$content", "data": $data}',
    ),
}
