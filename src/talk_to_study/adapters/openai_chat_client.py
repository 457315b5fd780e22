"""OpenAI Responses API client for follow-up questions."""

from dataclasses import dataclass

from openai import AsyncOpenAI

from talk_to_study.services.conversation import ChatClient


@dataclass
class OpenAIChatClient(ChatClient):
    """Chat client backed by OpenAI Responses API."""

    client: AsyncOpenAI
    store: bool = False

    @classmethod
    def create(cls, api_key: str, store: bool = False) -> "OpenAIChatClient":
        """Create an OpenAI chat client."""
        return cls(client=AsyncOpenAI(api_key=api_key), store=store)

    async def reply(
        self,
        *,
        model: str,
        instructions: str,
        messages: list[dict[str, str]],
    ) -> str:
        """Return the model's answer to the latest message."""
        response = await self.client.responses.create(
            model=model,
            instructions=instructions,
            input=messages,
            store=self.store,
        )
        return response.output_text or ""

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.client.close()
