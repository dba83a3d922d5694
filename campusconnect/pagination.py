from rest_framework.pagination import PageNumberPagination


class LimitPageNumberPagination(PageNumberPagination):
    """
    ?page=<n>&limit=<size>, newest-first ordering is left to the queryset.
    """
    page_size_query_param = "limit"
    max_page_size = 100
