"""Review handlers. Reviews are scoped to the store through their product."""

from __future__ import annotations

from storeforge.errors import AuthorizationError, NotFoundError
from storeforge.store.base import Filter
from storeforge.tools.contracts import ActionType, SideEffect, ToolResult
from storeforge.tools.handlers.base import limit_of
from storeforge.tools.registry import HandlerContext, ToolDefinition
from storeforge.tools.schemas import DeleteReviewArgs, GetReviewsArgs


def get_reviews(args: GetReviewsArgs, ctx: HandlerContext) -> ToolResult:
    filters: list[Filter] = []
    if args.product_id:
        filters.append(Filter("product_id", "eq", args.product_id))
    if args.rating:
        filters.append(Filter("rating", "eq", args.rating))
    if args.status and args.status != "all":
        filters.append(Filter("status", "eq", args.status))

    reviews = ctx.gateway.fetch_reviews(ctx.store_id, filters=filters)
    total = len(reviews)
    return ToolResult.ok({"reviews": reviews[: limit_of(args.limit)], "total": total}, f"Found {total} reviews")


def delete_review(args: DeleteReviewArgs, ctx: HandlerContext) -> ToolResult:
    owner = ctx.gateway.review_owner(args.review_id)
    if owner is None:
        raise NotFoundError("Review not found", suggestion="List reviews with getReviews.")
    if owner != ctx.store_id:
        raise AuthorizationError(
            "Review not found or unauthorized",
            details={"review_id": args.review_id},
        )
    ctx.gateway.delete_review(args.review_id)
    return ToolResult.ok({"deleted": [args.review_id]}, "Deleted review")


def _describe_delete(args: DeleteReviewArgs) -> tuple[str, str]:
    return "Delete review", f"Permanently delete review {args.review_id}? This cannot be undone."


TOOLS = [
    ToolDefinition(
        name="getReviews",
        description="Get product reviews",
        args_model=GetReviewsArgs,
        side_effect=SideEffect.READ,
        handler=get_reviews,
    ),
    ToolDefinition(
        name="deleteReview",
        description="Delete a product review. REQUIRES CONFIRMATION.",
        args_model=DeleteReviewArgs,
        side_effect=SideEffect.DESTRUCTIVE,
        handler=delete_review,
        action_type=ActionType.DELETE,
        describe=_describe_delete,
    ),
]
