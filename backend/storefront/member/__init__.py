"""
storefront.member

App “modèles” : les membres.

- models  : Member (colonnes + propriétés calculées)
- queries : MemberQuerySet (Member.objects.active().search(...))
- forms   : inscription / mise à jour (hook post_process)
- agents  : MemberAgent (mails, désactivation, nettoyage des alertes)
- signals : normalisation de l’email, trace de création

Aucune route ici : les vues sont dans storefront.account.
"""
