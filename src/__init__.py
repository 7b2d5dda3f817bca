"""
Gestimmo - Couche domaine/services d'une application de gestion locative.

Ce package fournit la gestion des utilisateurs, equipes, immeubles, lots,
contacts et interventions, ainsi que les operations composites multi-services
avec journalisation et rollback compensatoire.

Architecture : Hexagonale (Ports et Adaptateurs)
- core/ : Couche domaine (entites, erreurs, permissions, machine a etats, ports)
- services/ : Couche application (services metier, workflow, orchestration)
- infrastructure/ : Couche infrastructure (persistance SQLModel)
"""
