"""
Image Create MCP Server
=======================

Single-tool image generation across heterogeneous provider APIs.

Supported adapters:
- openai       OpenAI /images/generations (DALL-E, gpt-image)
- openai-chat  OpenAI-compatible /chat/completions gateways
- gemini       Google Gemini generateContent
- openrouter   OpenRouter chat completions with image output
"""

__version__ = "1.0.0"
