DEFAULT_ADMIN = {
    "email": "admin@league.local",
    "name": "League Admin",
    "password": "Admin@2026",
}

# (group, team name)
TEAMS = [
    ("A", "Atlas United"),
    ("A", "Casablanca Stars"),
    ("A", "Rif Rovers"),
    ("A", "Sahara FC"),
    ("B", "Agadir Waves"),
    ("B", "Fes Athletic"),
    ("B", "Marrakech City"),
    ("B", "Tangier Port"),
]

PLAYERS_PER_TEAM = 6

FIRST_NAMES = [
    "Youssef", "Hakim", "Achraf", "Sofiane", "Nayef", "Bilal",
    "Amine", "Karim", "Walid", "Zakaria", "Ilias", "Anass",
    "Mehdi", "Reda", "Hamza", "Omar", "Ayoub", "Ismael",
]

LAST_NAMES = [
    "Amrani", "Bennani", "Chakir", "Daoudi", "El Idrissi", "Fassi",
    "Ghazi", "Haddad", "Jabri", "Kettani", "Lahlou", "Mansouri",
    "Naciri", "Ouazzani", "Rami", "Saidi", "Tazi", "Zerouali",
]

# Knockout slots created empty, teams are filled in as groups finish
KNOCKOUT_SLOTS = [
    ("quarter", 1), ("quarter", 2), ("quarter", 3), ("quarter", 4),
    ("semi", 1), ("semi", 2),
    ("final", 1),
]
