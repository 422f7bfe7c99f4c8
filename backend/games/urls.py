from django.urls import path

from .views import game_detail, game_list, genre_list, platform_list

urlpatterns = [
    # Endpoint: /api/games/
    # Methods: GET (public, proxied to RAWG)
    path("", game_list, name="game-list"),
    path("genres/", genre_list, name="game-genres"),
    path("platforms/", platform_list, name="game-platforms"),
    path("<int:game_id>/", game_detail, name="game-detail"),
]
