from .openai_client import CompletionOutput, OpenAIRewriteClient, RewriteMetadata

__all__ = ["CompletionOutput", "OpenAIRewriteClient", "RewriteMetadata"]
