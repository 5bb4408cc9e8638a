class UpstreamUnavailable(Exception):
    """Network or HTTP failure while talking to the transit provider."""


class NotFound(Exception):
    """A specifically requested entity does not exist anywhere."""


class RouteNotFound(NotFound):
    def __init__(self, route_id: str) -> None:
        super().__init__(f"Route {route_id} not found upstream or in snapshot")
        self.route_id = route_id
