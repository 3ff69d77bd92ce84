"""
Route table for the gateway.

Order here is documentation order only; ``register_routes`` sorts by
specificity before handing routes to FastAPI.
"""
from .endpoints import admin_posts, auth, csrf, health, posts
from .routing import Route, register_routes

ROUTE_TABLE = [
    Route("GET", "/health", health.health_check, name="health", summary="Liveness check", tag="health"),

    Route("POST", "/login", auth.login, name="login", summary="Sign in with email and password", tag="auth"),
    Route("POST", "/logout", auth.logout, requires_auth=True, name="logout", summary="Revoke the current session", tag="auth"),
    Route("GET", "/user", auth.current_user, requires_auth=True, name="current_user", summary="Current identity", tag="auth"),
    Route("GET", "/csrf-token", csrf.issue_csrf_token, name="csrf_token", summary="Issue a CSRF token", tag="auth"),

    Route("GET", "/posts", posts.list_published_posts, name="list_published_posts", summary="List published posts", tag="posts"),
    Route("GET", "/posts/{post_id}", posts.get_published_post, name="get_published_post", summary="Get a published post", tag="posts"),

    Route("GET", "/admin/posts", admin_posts.list_posts, requires_auth=True,
          name="admin_list_posts", summary="List posts in any status", tag="admin"),
    Route("GET", "/admin/posts/{post_id}", admin_posts.get_post, requires_auth=True,
          name="admin_get_post", summary="Get a post in any status", tag="admin"),
    Route("POST", "/admin/posts", admin_posts.create_post, requires_auth=True, csrf_protected=True,
          name="admin_create_post", summary="Create a post", tag="admin", status_code=201),
    Route("PUT", "/admin/posts/{post_id}", admin_posts.update_post, requires_auth=True, csrf_protected=True,
          name="admin_update_post", summary="Update a post", tag="admin"),
    Route("DELETE", "/admin/posts/{post_id}", admin_posts.delete_post, requires_auth=True, csrf_protected=True,
          name="admin_delete_post", summary="Delete a post", tag="admin"),
]

__all__ = ["ROUTE_TABLE", "Route", "register_routes"]
