# Services package init
"""
NoteSmith Backend — Services Layer
====================================

Service Inventory:
    - segmenter:          sentence / paragraph splitting, title derivation
    - purposes:           purpose catalog and keyword classifier
    - renderers:          per-purpose Markdown templates (fallback notes)
    - prompts:            system prompts, JSON schema, marker handling
    - llm_base:           NoteGenerator strategy interface
    - generators:         RemoteGenerator / HeuristicGenerator
    - openrouter_client:  async chat-completion client (httpx)
    - image_intent:       image question classifier and prompts
    - chat_actions:       chatbot JSON action parser
    - note_service:       NoteService orchestrator
"""
