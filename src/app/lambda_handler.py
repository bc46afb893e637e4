import json
import logging

from mangum import Mangum

from .main import app

logger = logging.getLogger()
logger.setLevel(logging.INFO)

handler = Mangum(app, lifespan="auto")


def lambda_handler(event: dict, context: object) -> dict:
    event_str = json.dumps(event, default=str)
    if len(event_str) > 1000:
        logger.info(f"Event received (truncated): {event_str[:1000]}...")
    else:
        logger.info(f"Event received: {event_str}")

    try:
        return handler(event, context)
    except Exception as e:
        logger.exception(f"Unhandled exception in Lambda handler: {e}")
        return {
            "statusCode": 500,
            "headers": {"Content-Type": "application/json"},
            "body": json.dumps({"error": "处理请求失败", "details": str(e)}, ensure_ascii=False),
        }
