"""Request middleware: CORS, token validation and request logging"""
