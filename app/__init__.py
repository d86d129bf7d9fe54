"""HTTP application for StatsD HTTP Proxy"""
