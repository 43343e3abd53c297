from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='SubscriptionRecord',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('user_id', models.CharField(help_text='Identifier of the owning user in the user-record service', max_length=64)),
                ('stripe_customer_id', models.CharField(db_index=True, help_text='Stripe customer ID', max_length=200)),
                ('stripe_subscription_id', models.CharField(help_text='Stripe subscription ID', max_length=200, unique=True)),
                ('stripe_price_id', models.CharField(help_text='Stripe price ID of the first subscription item', max_length=200)),
                ('status', models.CharField(choices=[('incomplete', 'Incomplete'), ('incomplete_expired', 'Incomplete Expired'), ('trialing', 'Trialing'), ('active', 'Active'), ('past_due', 'Past Due'), ('canceled', 'Canceled'), ('unpaid', 'Unpaid'), ('paused', 'Paused')], default='incomplete', help_text='Subscription status', max_length=20)),
                ('current_period_start', models.DateTimeField(blank=True, help_text='Start time of the current billing cycle', null=True)),
                ('current_period_end', models.DateTimeField(blank=True, help_text='End time of the current billing cycle', null=True)),
                ('cancel_at_period_end', models.BooleanField(default=False, help_text='Whether Stripe will cancel the subscription when the period ends')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'db_table': 'subscription_record',
                'ordering': ('-created_at',),
            },
        ),
        migrations.AddIndex(
            model_name='subscriptionrecord',
            index=models.Index(fields=['user_id', 'status'], name='subscription_user_status'),
        ),
    ]
