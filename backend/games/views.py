from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from .client import fetch


def _params(request):
    # Flatten the QueryDict; RAWG takes single-valued parameters
    return request.query_params.dict()


@api_view(["GET"])
@permission_classes([AllowAny])
def game_list(request):
    """Search or browse games. Accepts any RAWG list filter (search, page, genres...)."""
    return Response(fetch("games", _params(request)))


@api_view(["GET"])
@permission_classes([AllowAny])
def game_detail(request, game_id):
    return Response(fetch(f"games/{game_id}", _params(request)))


@api_view(["GET"])
@permission_classes([AllowAny])
def genre_list(request):
    return Response(fetch("genres", _params(request)))


@api_view(["GET"])
@permission_classes([AllowAny])
def platform_list(request):
    return Response(fetch("platforms", _params(request)))
