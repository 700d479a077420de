"""BananaBot backend: Steam login, SteamLadder rank lookup and leveling tools."""
