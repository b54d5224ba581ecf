"""
DeTransport Ads — services package. Business logic lives here; views only handle request/response.

Submodules:
  from ads.services.sessions import SessionStore
  from ads.services.conversation import ConversationEngine
  from ads.services.repository import SubmissionRepository
  from ads.services.moderation import ModerationWorkflow
  from ads.services.publication import active_submissions
  from ads.services.telegram_client import send_message, get_updates, ...
  from ads.services.telegram_update_handler import process_update
  from ads.services.bot_worker import BotWorker, KeyedDispatcher
"""
