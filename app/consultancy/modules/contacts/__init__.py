"""
Contact form module.

Public:
- POST /api/contacts: contact-form submission with up to 5 attachments

Admin-only:
- list, detail, attachment download, delete
"""
