from chatrelay.router.api.chat import router as chat_router
from chatrelay.router.api.config import router as config_router

routers = [chat_router, config_router]
