"""
MongoDB 连接句柄：AsyncIOMotorClient 创建 + 生命周期事件日志

- 启动时 connect() 探测一次连接，失败只记录排查提示，不重试、不阻止启动
- 拓扑 opened/closed 与心跳失败通过 pymongo monitoring 监听器写日志
- 句柄由应用工厂创建并挂在 app.state 上，不做模块级单例
"""

import structlog
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo import monitoring

from app.config import Settings

log = structlog.get_logger()

TROUBLESHOOTING_TIPS = (
    "1. 检查 MONGODB_URI 中的密码是否正确",
    "2. 确认 MongoDB Atlas 的 Network Access 允许 0.0.0.0/0",
    "3. 新建数据库用户后等待 2-3 分钟再连接",
    "4. 检查本机 IP 地址是否发生变化",
)


class TopologyEventLogger(monitoring.TopologyListener):
    """拓扑打开/关闭事件"""

    def opened(self, event: monitoring.TopologyOpenedEvent) -> None:
        log.info("MongoDB 连接已打开", topology_id=str(event.topology_id))

    def description_changed(self, event: monitoring.TopologyDescriptionChangedEvent) -> None:
        pass

    def closed(self, event: monitoring.TopologyClosedEvent) -> None:
        log.info("MongoDB 连接已关闭", topology_id=str(event.topology_id))


class HeartbeatEventLogger(monitoring.ServerHeartbeatListener):
    """心跳失败视为连接错误事件，仅记录日志"""

    def started(self, event: monitoring.ServerHeartbeatStartedEvent) -> None:
        pass

    def succeeded(self, event: monitoring.ServerHeartbeatSucceededEvent) -> None:
        pass

    def failed(self, event: monitoring.ServerHeartbeatFailedEvent) -> None:
        log.warning(
            "MongoDB 连接错误事件",
            address=f"{event.connection_id[0]}:{event.connection_id[1]}",
            error=str(event.reply),
        )


class MongoHandle:
    """进程级 MongoDB 连接句柄"""

    def __init__(self, settings: Settings, client: AsyncIOMotorClient | None = None):
        self._settings = settings
        # motor 客户端是惰性的：构造时不发起网络 I/O
        self.client = client or AsyncIOMotorClient(
            settings.MONGODB_URI,
            serverSelectionTimeoutMS=settings.MONGODB_SERVER_SELECTION_TIMEOUT_MS,
            tz_aware=True,
            event_listeners=[TopologyEventLogger(), HeartbeatEventLogger()],
        )

    @property
    def database(self) -> AsyncIOMotorDatabase:
        return self.client[self._settings.MONGODB_DB]

    def collection(self, name: str | None = None) -> AsyncIOMotorCollection:
        return self.database[name or self._settings.MONGODB_COLLECTION]

    async def ping(self) -> None:
        """向服务端发送 ping，失败时抛出驱动异常"""
        await self.client.admin.command("ping")

    async def connect(self) -> bool:
        """
        启动时探测连接。

        失败时记录错误名称、错误信息和排查提示后返回 False，
        进程继续运行，后续数据操作在调用时以存储错误的形式失败。
        """
        log.info(
            "尝试连接 MongoDB",
            uri_configured=self._settings.mongodb_uri_configured,
            database=self._settings.MONGODB_DB,
        )
        try:
            await self.ping()
        except Exception as e:
            log.error(
                "MongoDB 连接失败",
                error_name=type(e).__name__,
                error=str(e),
                tips=list(TROUBLESHOOTING_TIPS),
            )
            return False

        log.info("MongoDB 连接成功", database=self._settings.MONGODB_DB)
        return True

    def close(self) -> None:
        self.client.close()
