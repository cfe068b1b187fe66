from abc import ABC, abstractmethod

from triprelay.domain.entities.chat import ChatInfo


class ChatPlatformPort(ABC):
    @property
    @abstractmethod
    def self_id(self) -> str | None:
        """Identity the service posts as; excluded from member lists."""
        raise NotImplementedError

    @abstractmethod
    async def start_session(self, headless: bool) -> None:
        raise NotImplementedError

    @abstractmethod
    async def get_chat(self, chat_id: str) -> ChatInfo:
        """
        Raises:
            ChatPlatformError: chat unknown or gateway unavailable
        """
        raise NotImplementedError

    @abstractmethod
    async def send_text(self, chat_id: str, text: str) -> None:
        """
        Raises:
            ChatPlatformError: message could not be delivered
        """
        raise NotImplementedError

    async def aclose(self) -> None:
        return None
