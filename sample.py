"""
Switchyard - sample application

Run with: uvicorn sample:app --reload
"""

import logging
import time

from switchyard import HttpContext, Switchyard
from switchyard.middleware import RequestLoggingMiddleware, bearer_auth

SECRET_KEY = "{YOUR_SECRET_HERE}"

logger = logging.getLogger("switchyard.sample")

app: Switchyard = Switchyard(debug=True, title="Switchyard Demo", version="0.1.0")
app.add_middleware(RequestLoggingMiddleware)

routes = app.routes
auth = bearer_auth(secret_key=SECRET_KEY)


# =============================================================================
# Controllers
# =============================================================================


class UserController:
    """Instance methods: resolved on a fresh controller when routes are applied."""

    def __init__(self) -> None:
        self.users = {1: "ada", 2: "grace"}

    async def index(self, ctx: HttpContext) -> dict:
        return {"users": [{"id": k, "name": v} for k, v in self.users.items()]}

    async def show(self, ctx: HttpContext) -> None:
        user_id = ctx.request.path_params["user_id"]
        if user_id not in self.users:
            await ctx.response.envelope(False, 404, "User not found")
            return
        await ctx.response.envelope(True, 200, "OK", {"id": user_id, "name": self.users[user_id]})


class HealthController:
    """Static methods: used without instantiating the controller."""

    @staticmethod
    def status(ctx: HttpContext) -> dict:
        return {"status": "healthy", "time": int(time.time())}


def stamp(request, response, next) -> None:
    response.set_header("x-served-by", "switchyard")
    next()


# =============================================================================
# Routes
# =============================================================================


routes.get("/", lambda ctx: f"Welcome to {app.title}!")
routes.get("/health", (HealthController, "status"))


def api() -> None:
    routes.get("/ping", lambda ctx: ctx.respond("pong"))

    def secured() -> None:
        routes.get("/users", (UserController, "index"))
        routes.get("/users/{user_id:int}", (UserController, "show"))

    routes.middleware([auth], secured)


routes.group("/api", api, [stamp])


if __name__ == "__main__":
    app.run(host="127.0.0.1", port=8000, reload=False)
