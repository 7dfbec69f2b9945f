import logging

logger = logging.getLogger("audit")

def write_log(*, user_id=None, action, resource, status="SUCCESS", ip=None, meta=None):
    level = logging.INFO if status == "SUCCESS" else logging.WARNING
    logger.log(
        level,
        "%s %s %s user=%s ip=%s meta=%s",
        action, resource, status, user_id, ip, meta or {},
    )
