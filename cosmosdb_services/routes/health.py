import logging

from quart import Blueprint, current_app, jsonify

logger = logging.getLogger("cosmosdb_services")

health_bp = Blueprint("cosmos_health", __name__, url_prefix="/health")


@health_bp.route("/cosmos", methods=["GET"])
async def cosmos_health():
    """
    GET /health/cosmos
    Checks that every known container is reachable.

    200 {"status": "ok", "containers": {"<db>/<container>": {"ok": true, "message": "..."}}}
    503 with status "degraded" if any container is missing or unreachable.
    404 if the Cosmos DB service is not configured.
    """
    ready = getattr(current_app, "cosmos_db_ready", None)
    if ready is None:
        logger.warning("Cosmos DB service not configured, health check aborted")
        return jsonify({"error": "Cosmos DB not configured"}), 404
    await ready.wait()

    factory = current_app.cosmos_container_factory
    checks = await factory.ensure_all(create=False)
    containers = {
        name: {"ok": ok, "message": message}
        for name, (ok, message) in checks.items()
    }
    healthy = all(ok for ok, _ in checks.values())
    if not healthy:
        logger.warning("Cosmos DB health check degraded: %s", containers)
    return jsonify({
        "status": "ok" if healthy else "degraded",
        "containers": containers,
    }), 200 if healthy else 503
