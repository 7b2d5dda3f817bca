"""
Couche domaine de Gestimmo.

Contient les entites metier, les erreurs typees, le modele de permissions,
la machine a etats des interventions et les ports (interfaces abstraites).
Cette couche ne depend d'aucune bibliotheque d'infrastructure.
"""
