"""
Couche services applicatifs (cas d'usage).

Les services orchestrent la logique metier : validation des entrees,
controles de coherence entre entites et controle d'acces. Ils dependent
des ports (interfaces) de core/, jamais des implementations concretes de
infrastructure/.

Contenu :
- services d'entites (user, team, building, lot, contact)
- intervention/ : cycle de vie des interventions
- composite/ : operations multi-etapes avec compensation
"""
