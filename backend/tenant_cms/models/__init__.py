from .tenant import Tenant
from .user import User
from .template import Template
from .page import Page
from .section import Section
from .page_version import PageVersion
from .service_category import ServiceCategory
from .service import Service
from .testimonial import Testimonial
from .team_member import TeamMember
from .faq import Faq
from .menu import Menu
from .setting import Setting
from .media import Media
from .webhook import Webhook
from .contact_submission import ContactSubmission
from .audit_log import AuditLog
